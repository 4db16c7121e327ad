#!/usr/bin/env python3
# -*- coding: utf-8 -*-


DEFAULT_BASE_URL = 'http://127.0.0.1:8000'  # Servidor de estadísticas, sobrescribible con LOTTOSTATS_BASE_URL
DEFAULT_TIMEOUT = 15.0  # segundos por petición, sin reintentos
PAGE_SIZE = 20  # Cantidad de sorteos por página en latest-combinations

ENV_BASE_URL = 'LOTTOSTATS_BASE_URL'
ENV_TIMEOUT = 'LOTTOSTATS_TIMEOUT'
ENV_PAGE_SIZE = 'LOTTOSTATS_PAGE_SIZE'

MAIN_NUMBERS = 5  # Cantidad de números que forman una combinación, sin contar la bola especial

MEGA_MILLIONS = 'mega_millions'
POWERBALL = 'powerball'

MEGABALL_FIELD = 'mega_ball'  # campo de la bola especial en los sorteos de Mega Millions
POWERBALL_FIELD = 'powerball'  # campo de la bola especial en los sorteos de Powerball
SPECIAL_BALL_FIELDS = (MEGABALL_FIELD, POWERBALL_FIELD)  # orden de búsqueda al decodificar
CANONICAL_SPECIAL_BALL_FIELD = 'special_ball'  # nombre único al codificar

MULTIPLIER_EPSILON = 1e-9
Q_TOP_NUMBERS = 10  # números más frecuentes que se muestran por consola
