"""Walking + subway itinerary explorer with chained arrival predictions."""
