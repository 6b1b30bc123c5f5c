"""Output layer — render results and service definitions for humans or machines."""
