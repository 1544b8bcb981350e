# Infrastructure Card Source Adapters Package
from .memory_cards import InMemoryCardSource
from .yaml_cards import YamlCardSource

__all__ = ["InMemoryCardSource", "YamlCardSource"]
