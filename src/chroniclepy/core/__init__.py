"""Core domain: values, records, options and ports."""
