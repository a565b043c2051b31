"""Rate providers and concrete currency conversions built on the domain types."""
