#!/usr/bin/env python3

"""Domain services for parsing, layout and code generation."""
