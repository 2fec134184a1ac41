"""Core value types shared by the store layers."""
