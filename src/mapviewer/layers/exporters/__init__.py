"""Serializers for built layers."""
