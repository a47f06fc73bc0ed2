"""
Hearth - Multi-bot Personal Assistant

A set of small chat bots (health, finance, recipes, events, weather) that
share one context document per user:
- The context store keeps the per-user document and its merge/update rules
- Bots read the document, derive updates from the user's message, ask a
  text-generation service for a reply and post-process it
- A REST API exposes the context service and the bots

Components:
- hearth.context - Context store, merge, domain rules, affordability helpers
- hearth.bots    - Bot handlers, text generation, response parsing
- hearth.servers - FastAPI application
- hearth.cli     - Command-line interface
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
