"""크리에이터 수익 대시보드"""
