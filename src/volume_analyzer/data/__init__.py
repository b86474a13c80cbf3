"""Zasoby danych (tabele geometrii) dołączane do pakietu."""
