"""Domain packages - scheduling, reporting, bookings and photo verification"""
