"""
MotoTrack : enregistrement de rides GPS, stockage local hors-ligne et
synchronisation avec le service distant.
"""
__version__ = "1.0.0"
