"""Telegram front end for the arena."""
