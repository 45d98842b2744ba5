"""Domain, ORM and DTO models."""
