"""
Hearth Bots - chat handlers on top of the shared context.

Each bot reads and updates the user's context through ContextService and
wraps one call to a TextGenerator.
"""

from dataclasses import dataclass

from hearth.bots.events import EventsBot
from hearth.bots.finance import FinanceBot
from hearth.bots.generation import (
    ChatTurn,
    GeminiGenerator,
    GenerationRequest,
    TextGenerator,
)
from hearth.bots.health import HealthBot
from hearth.bots.health_card import HealthCardBot
from hearth.bots.products import ProductsBot
from hearth.bots.recipes import RecipesBot
from hearth.bots.suggestions import SuggestionAnnotator
from hearth.bots.weather import WeatherBot
from hearth.context.service import ContextService
from hearth.context.signals import TextSignalExtractor
from hearth.core.config import Settings


@dataclass
class Bots:
    """All bots sharing one service, generator and extractor."""

    health: HealthBot
    finance: FinanceBot
    events: EventsBot
    recipes: RecipesBot
    weather: WeatherBot
    products: ProductsBot
    health_card: HealthCardBot


def create_bots(
    service: ContextService,
    generator: TextGenerator,
    settings: Settings,
    annotate: bool = True,
) -> Bots:
    """Wire every bot with shared collaborators."""
    extractor = TextSignalExtractor()
    annotator = SuggestionAnnotator(settings.currency_symbol) if annotate else None
    common = {
        "extractor": extractor,
        "annotator": annotator,
        "currency": settings.currency_symbol,
    }
    return Bots(
        health=HealthBot(
            service,
            generator,
            illness_days=settings.health_illness_days,
            city=settings.default_city,
            **common,
        ),
        finance=FinanceBot(service, generator, **common),
        events=EventsBot(service, generator, **common),
        recipes=RecipesBot(service, generator, city=settings.default_city, **common),
        weather=WeatherBot(service, generator, **common),
        products=ProductsBot(service, generator, city=settings.default_city, **common),
        health_card=HealthCardBot(service, generator, **common),
    )


__all__ = [
    "Bots",
    "ChatTurn",
    "EventsBot",
    "FinanceBot",
    "GeminiGenerator",
    "GenerationRequest",
    "HealthBot",
    "HealthCardBot",
    "ProductsBot",
    "RecipesBot",
    "SuggestionAnnotator",
    "TextGenerator",
    "WeatherBot",
    "create_bots",
]
