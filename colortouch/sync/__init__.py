"""Offline-first sync: entity registry, conflict policy and the client engine."""
