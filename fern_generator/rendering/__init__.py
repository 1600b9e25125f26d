"""Drawing surfaces, curves, colors and image export."""
