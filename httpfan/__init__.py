"""Expose a fan controlled over HTTP as a HomeKit accessory."""
