"""Reservations domain - booking, status changes, listings and reminders"""
