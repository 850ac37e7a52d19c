"""Domain services: sessions, membership, rooms, messages and profiles."""
