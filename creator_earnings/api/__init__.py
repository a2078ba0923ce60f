"""외부 API 클라이언트"""
