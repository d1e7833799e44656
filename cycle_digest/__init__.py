"""Daily cycle digest built from an agent's commit log."""
