"""Domain layer: posting rules, category hierarchy, repository protocols."""
