"""External tool integrations (age, docker) and file renderers."""
