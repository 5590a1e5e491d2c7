"""
Lead/Sales Matcher
Links dealer sales to marketing leads by estimating per-pair match probabilities
"""
