"""Domain layer: business rules independent of HTTP and storage."""
