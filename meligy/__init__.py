"""Meligy — bilingual chat assistant service."""
