"""서비스 패키지: 비즈니스 로직 계층.

Service package: Issue lifecycle, duplicate merging, audit trail, and
notification fan-out. Audit and notification writers are best-effort.
"""
