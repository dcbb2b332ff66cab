# Routes package init
"""
ProjectRepo Backend - API Routes Package
=========================================

Route Inventory:
    - auth.py:           /api/auth/login, /api/auth/register/*, /api/auth/me,
                         /api/navigation
    - projects.py:       /api/projects/*, /api/supervisors
    - notifications.py:  /api/notifications/*
    - admin.py:          /api/admin/*
    - files.py:          /api/files/{ref}
    - health.py:         /health

Routes stay thin: they resolve the caller, read the request, call one
service method and shape the response. Business rules live in services.
"""
