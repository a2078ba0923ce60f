"""대시보드 페이지"""
