"""Core redemption service packages"""
