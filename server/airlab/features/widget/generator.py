"""
Генерация автономного HTML+JS чат-виджета ассистента.
"""
from jinja2 import Template

from .schemas import WidgetConfig

BUTTON_SIZES = {"small": 50, "medium": 60, "large": 70}

WIDGET_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="ru">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Чат-виджет {{ name }}</title>
    <style>
        .chat-widget {
            position: fixed;
            {{ vertical }}: 20px;
            {{ horizontal }}: 20px;
            z-index: 10000;
            font-family: {{ c.font_family|safe }};
        }
        .chat-button {
            width: {{ button_size }}px;
            height: {{ button_size }}px;
            background: {{ c.primary_color }};
            border-radius: 50%;
            border: none;
            cursor: pointer;
            display: flex;
            align-items: center;
            justify-content: center;
            box-shadow: 0 4px 20px rgba(0,0,0,0.15);
            transition: all 0.3s ease;
        }
        .chat-button:hover {
            transform: scale(1.1);
            background: {{ c.secondary_color }};
        }
        .chat-window {
            position: absolute;
            {{ vertical }}: {{ button_size + 10 }}px;
            {{ horizontal }}: 0;
            width: 350px;
            height: 500px;
            background: {{ c.background_color }};
            border-radius: {{ c.border_radius }}px;
            box-shadow: 0 10px 40px rgba(0,0,0,0.2);
            display: none;
            flex-direction: column;
            overflow: hidden;
        }
        .chat-window.open { display: flex; }
        .chat-header {
            background: {{ c.primary_color }};
            color: white;
            padding: 15px;
            display: flex;
            align-items: center;
            gap: 10px;
        }
        .avatar {
            width: 40px;
            height: 40px;
            border-radius: 50%;
            background: white;
            display: flex;
            align-items: center;
            justify-content: center;
            overflow: hidden;
        }
        .avatar img { width: 100%; height: 100%; object-fit: cover; border-radius: 50%; }
        .avatar-initial {
            width: 24px;
            height: 24px;
            border-radius: 50%;
            background: {{ c.primary_color }};
            color: white;
            font-size: 14px;
            font-weight: bold;
            display: flex;
            align-items: center;
            justify-content: center;
        }
        .chat-messages {
            flex: 1;
            padding: 15px;
            overflow-y: auto;
            background: {{ c.background_color }};
        }
        .chat-input-area {
            padding: 15px;
            border-top: 1px solid #e5e7eb;
            display: flex;
            gap: 10px;
        }
        .chat-input {
            flex: 1;
            padding: 10px;
            border: 1px solid #d1d5db;
            border-radius: {{ half_radius }}px;
            font-size: {{ c.font_size }}px;
            color: {{ c.text_color }};
        }
        .send-button {
            background: {{ c.primary_color }};
            color: white;
            border: none;
            padding: 10px 15px;
            border-radius: {{ half_radius }}px;
            cursor: pointer;
            font-size: {{ c.font_size }}px;
        }
        .message {
            margin-bottom: 10px;
            padding: 8px 12px;
            border-radius: {{ half_radius }}px;
            max-width: 80%;
            font-size: {{ c.font_size }}px;
        }
        .message.user { background: {{ c.primary_color }}; color: white; margin-left: auto; }
        .message.assistant { background: #f3f4f6; color: {{ c.text_color }}; }
        .message.typing { opacity: 0.6; font-style: italic; }
    </style>
</head>
<body>
    <div class="chat-widget">
        <button class="chat-button" onclick="toggleChat()">
            <svg width="24" height="24" fill="white" viewBox="0 0 24 24">
                <path d="M12 2C6.48 2 2 6.48 2 12s4.48 10 10 10h8V12c0-5.52-4.48-10-10-10zm0 18c-4.41 0-8-3.59-8-8s3.59-8 8-8 8 3.59 8 8v8h-8z"/>
                <circle cx="9" cy="12" r="1"/>
                <circle cx="12" cy="12" r="1"/>
                <circle cx="15" cy="12" r="1"/>
            </svg>
        </button>

        <div class="chat-window" id="chatWindow">
            <div class="chat-header">
                {% if c.show_avatar %}
                <div class="avatar">
                    {% if c.avatar_url %}<img src="{{ c.avatar_url }}" alt="Avatar" />{% else %}<div class="avatar-initial">{{ initial }}</div>{% endif %}
                </div>
                {% endif %}
                <div>
                    <div style="font-weight: 600;">{{ name }}</div>
                    <div style="font-size: 12px; opacity: 0.9;">В сети</div>
                </div>
            </div>

            <div class="chat-messages" id="chatMessages">
                <div class="message assistant">{{ c.welcome_message }}</div>
            </div>

            <div class="chat-input-area">
                <input type="text" class="chat-input" placeholder="{{ c.placeholder }}" id="messageInput" onkeypress="handleKeyPress(event)">
                <button class="send-button" onclick="sendMessage()">{{ c.button_text }}</button>
            </div>
        </div>
    </div>

    <script>
        var WIDGET = {{ script_config | tojson }};
        var isOpen = false;

        function toggleChat() {
            isOpen = !isOpen;
            document.getElementById('chatWindow').classList.toggle('open', isOpen);
        }

        function handleKeyPress(event) {
            if (event.key === 'Enter') {
                sendMessage();
            }
        }

        function sessionId() {
            var key = 'airlab-widget-' + WIDGET.assistantId;
            var value = localStorage.getItem(key);
            if (!value) {
                value = 'w' + Date.now() + Math.random().toString(36).slice(2, 8);
                localStorage.setItem(key, value);
            }
            return value;
        }

        function addMessage(role, text) {
            var messages = document.getElementById('chatMessages');
            var item = document.createElement('div');
            item.className = 'message ' + role;
            item.textContent = text;
            messages.appendChild(item);
            messages.scrollTop = messages.scrollHeight;
            return item;
        }

        function sendMessage() {
            var input = document.getElementById('messageInput');
            var text = input.value.trim();
            if (!text) {
                return;
            }
            addMessage('user', text);
            input.value = '';

            if (!WIDGET.chatUrl) {
                setTimeout(function () {
                    addMessage('assistant', 'Спасибо за ваше сообщение! Это демо-ответ.');
                }, 1000);
                return;
            }

            var typing = WIDGET.showTyping ? addMessage('assistant typing', '...') : null;
            fetch(WIDGET.chatUrl, {
                method: 'POST',
                headers: { 'Content-Type': 'application/json' },
                body: JSON.stringify({ message: text, sessionId: sessionId() })
            })
                .then(function (response) { return response.json(); })
                .then(function (data) {
                    if (typing) { typing.remove(); }
                    addMessage('assistant', data.reply || data.error || 'Ошибка');
                })
                .catch(function () {
                    if (typing) { typing.remove(); }
                    addMessage('assistant', 'Не удалось отправить сообщение');
                });
        }
    </script>
</body>
</html>
""", autoescape=True)


def chat_url(api_base_url: str, assistant_id: str) -> str:
    return f"{api_base_url.rstrip('/')}/api/widget/{assistant_id}/chat"


def render_widget(config: WidgetConfig, assistant_id: str, assistant_name: str) -> str:
    """HTML виджета; весь пользовательский текст экранируется"""
    name = assistant_name or "Ассистент"
    button_size = BUTTON_SIZES[config.size]
    return WIDGET_TEMPLATE.render(
        c=config,
        name=name,
        initial=name[0].upper(),
        vertical="bottom" if config.position.startswith("bottom") else "top",
        horizontal="right" if config.position.endswith("right") else "left",
        button_size=button_size,
        half_radius=config.border_radius // 2,
        script_config={
            "assistantId": assistant_id,
            "chatUrl": chat_url(config.api_base_url, assistant_id) if config.api_base_url else None,
            "showTyping": config.show_typing,
        },
    )
