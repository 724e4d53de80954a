"""Dispatch application for the hospital equipment backend.

This package contains the models, services, serializers, views and
route registrations for transport requests, equipment units and staff
workload.
"""
