"""muxfmt: Handlebars templates over terminal multiplexer session state."""

__version__ = "0.1.0"
