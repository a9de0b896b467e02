"""
extract-audio - Dump embedded audio payloads from columnar files.

Reads an Arrow IPC or Parquet file batch by batch, locates the binary audio
column and its identifier column, and writes each row's bytes to its own
file: schema resolution → batch reading → row extraction → output writing.
"""

__version__ = "0.1.0"
