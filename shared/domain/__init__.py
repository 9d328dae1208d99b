"""Domain primitives shared by the marketplace apps."""
