"""레포지토리 패키지: 데이터베이스 쿼리 계층.

Repository package: Query layer for users, issues, audit logs, and notifications.
Repositories only flush; services and routers decide when to commit.
"""
