"""
Database models for the hospital directory.

A doctor always belongs to exactly one department. Both carry
creation/update timestamps.
"""
from __future__ import annotations

from django.db import models


class Department(models.Model):
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class Doctor(models.Model):
    name = models.CharField(max_length=255)
    specialization = models.CharField(max_length=255)
    # a department cannot be deleted while doctors reference it
    department = models.ForeignKey(
        Department, on_delete=models.PROTECT, related_name='doctors'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']

    def __str__(self) -> str:
        return f"{self.name} ({self.specialization})"
