"""Domain packages: scheduling rules, businesses and reservations"""
