"""Runtime for call-graph and block-coverage collection: metadata, agent, collectors and a demo service."""

__version__ = "0.1.0"