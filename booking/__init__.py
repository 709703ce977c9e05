"""
Appointment Booking API

A FastAPI service where patients, doctors and admins book and manage
appointments, with ownership-based access control and double-booking
prevention.
"""

__version__ = "1.0.0"
