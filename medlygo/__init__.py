"""MedlyGo hospital appointment booking API"""
