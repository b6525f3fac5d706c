"""
Clinical Scoring Systems

This package provides validated bedside scores used on the ward: soft tissue
infection and sepsis scores, diabetic foot wound classifications, limb salvage,
substance use, burns, renal function and nutrition screening.
"""
