"""
lu_replay — Replica Capture Replay

Replays recorded game-server packet captures and verifies each payload
decodes exactly against the known schemas.

Packages:
    protocol/  — bit reader, leaf schemas, replica envelopes, component recipes
    data/      — component catalog, per-capture schema cache, packet router
    capture/   — capture sources and the replay driver
    main.py    — command-line entry point
"""
