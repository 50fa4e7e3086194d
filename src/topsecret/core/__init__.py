"""Core package of TopSecret."""
