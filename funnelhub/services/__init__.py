"""Reconciliation, availability and orchestration services"""
