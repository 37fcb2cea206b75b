import json

import httpx


class WordCloudRenderer:
    """Ссылка QuickChart на облако слов по частотному словарю."""

    def __init__(self, base_url: str = "https://quickchart.io/chart"):
        self.base_url = base_url

    def chart_config(self, word_frequency: dict[str, int]) -> dict:
        return {
            "type": "wordCloud",
            "data": {
                "labels": list(word_frequency),
                "datasets": [
                    {
                        "label": "Word Frequency",
                        "data": [{"text": w, "value": n} for w, n in word_frequency.items()],
                    }
                ],
            },
            "options": {
                "title": {"display": True, "text": "Word Cloud"},
                "plugins": {
                    "wordcloud": {
                        "color": "#000000",
                        "minSize": 10,
                        "rotation": {"from": 0, "to": 0, "numOfOrientation": 1},
                    }
                },
            },
        }

    def render_url(self, word_frequency: dict[str, int] | None) -> str:
        if not word_frequency:
            return ""
        config = json.dumps(self.chart_config(word_frequency), ensure_ascii=False, separators=(",", ":"))
        return str(httpx.URL(self.base_url, params={"c": config}))
