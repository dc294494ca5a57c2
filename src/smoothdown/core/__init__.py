"""Domain logic of the document preparation pipeline."""
