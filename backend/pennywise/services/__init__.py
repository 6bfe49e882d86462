"""Notification services: scanning, rendering and delivery."""
