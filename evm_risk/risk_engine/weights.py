class W:
    LARGE_TRANSFER = 60
    CONTRACT_INTERACTION = 40

    SCORE_MAX = 100
    LEVEL_HIGH = 70
    LEVEL_MEDIUM = 30
