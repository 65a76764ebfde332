"""Nemory: scheduled Notion summaries delivered to Telegram."""

__version__ = "0.1.0"
