"""
Adaptateurs plateforme : fournisseurs de localisation et verrou anti-veille
"""
