"""Plain-text health reports used as emergency email bodies."""
