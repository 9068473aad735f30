"""Chat platform boundary: the abstract interface the router calls and its Discord implementation."""
