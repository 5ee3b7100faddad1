"""
Services du domaine MotoTrack
"""
