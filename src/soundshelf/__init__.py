"""soundshelf - browse storage backends and stream audio through a same-origin proxy."""

__version__ = "1.0.0"
