from .emit import build_table, emit_bare, emit_formatted
