#!/usr/bin/env python
"""
Emit the versioned JSON Schema for suggestion responses to schema/suggestion.v1.json
"""
import os
from catalog.loader import emit_suggestion_schema

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
OUT = os.path.join(ROOT, "schema", "suggestion.v1.json")

if __name__ == "__main__":
    emit_suggestion_schema(OUT)
    print(f"Wrote {OUT}")
