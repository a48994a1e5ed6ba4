"""Parichay - digital business cards and microsites API"""
