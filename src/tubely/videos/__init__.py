"""Video upload pipeline."""
