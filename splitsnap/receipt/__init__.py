"""Receipt text and image transforms (pure, Pillow only)."""
