"""Utility helpers for enumcache."""
