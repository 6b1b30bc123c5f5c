"""Infrastructure layer — transaction providers and the runtime bundle."""
