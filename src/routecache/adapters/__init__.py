"""Framework adapters for routecache."""
