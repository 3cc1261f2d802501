#!/usr/bin/env python3

"""Domain layer: models, type table and layout services."""
