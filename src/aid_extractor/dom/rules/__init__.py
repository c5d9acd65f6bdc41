"""Validation rules, discovered by the SchemaRegistry."""
