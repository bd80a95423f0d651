"""Building blocks for bootstrapping local Lando WordPress projects: context, pipeline, runners, tool checks, starter data and steps."""

__version__ = "0.1.0"