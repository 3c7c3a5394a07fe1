"""Side-by-side comparison of GitHub repositories' releases, stars, and issues."""

__version__ = "1.0.0"
