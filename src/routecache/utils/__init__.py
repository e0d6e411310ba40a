"""Utility helpers for routecache."""
