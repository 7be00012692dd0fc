#!/usr/bin/env python3
"""
Example: Function Calling with Ollama

Demonstrates:
1. Turning a typed function into a FunctionCallback
2. Letting the model call it for several cities in one request
3. Enabling callbacks per request by name
4. Inspecting rounds, tool calls and token usage

Requires a running Ollama server with a tool-capable model:
    ollama pull mistral
"""
import asyncio
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from llm_adapters import (
    ChatOptions,
    FunctionCallingChat,
    LLMAdapterError,
    OllamaChatModel,
    callback,
    configure_logging,
)


class Unit(str, Enum):
    C = "C"
    F = "F"


@dataclass
class WeatherRequest:
    location: str
    unit: Unit = Unit.C


@dataclass
class WeatherResponse:
    temp: float
    unit: Unit


@callback(name="CurrentWeather", description="Get the weather in location")
def current_weather(request: WeatherRequest) -> WeatherResponse:
    temps = {"San Francisco": 30.0, "Tokyo": 10.0, "Paris": 15.0}
    for city, temp in temps.items():
        if city.lower() in request.location.lower():
            return WeatherResponse(temp=temp, unit=request.unit)
    return WeatherResponse(temp=20.0, unit=request.unit)


async def main():
    configure_logging(level="WARNING", json_output=False)

    print("=" * 60)
    print("FUNCTION CALLING EXAMPLE")
    print("=" * 60)

    print("\nCallback schema sent to the model:")
    print(f"  {current_weather.to_tool_definition()}")

    model = OllamaChatModel(model="mistral")
    chat = FunctionCallingChat(
        model,
        callbacks=[current_weather],
        default_options=ChatOptions(temperature=0.0),
    )

    try:
        result = await chat.call(
            "What's the weather like in San Francisco, Tokyo, and Paris?",
            ChatOptions(functions={"CurrentWeather"}),
        )
    except LLMAdapterError as e:
        print(f"\nRequest failed: {e}")
        return
    finally:
        await model.close()

    print(f"\nAnswer: {result.content}")
    print(f"Rounds: {result.num_rounds}")
    for tc in result.all_tool_calls:
        print(f"  - {tc.name}({tc.arguments})")
    if result.usage:
        print(f"Tokens: {result.usage.total_tokens}")


if __name__ == "__main__":
    asyncio.run(main())
