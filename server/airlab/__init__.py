"""
Air Lab Assistant Builder - backend конструктора ассистентов OpenAI.
"""
