"""Bookings domain - Service catalogue, booking wizard and booking requests"""
