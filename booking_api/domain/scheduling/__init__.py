"""Scheduling domain - operating hours, availability and the reservation status machine"""
