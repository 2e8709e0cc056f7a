"""Script para iniciar o servidor FastAPI (porta em PORT, padrão 4000)."""
import sys
import os

# Adiciona o diretório atual ao path
sys.path.insert(0, os.path.dirname(__file__))

if __name__ == "__main__":
    import uvicorn
    from pharmaportal.config import get_settings

    uvicorn.run(
        "pharmaportal.main:app",
        host="0.0.0.0",
        port=get_settings().port,
        reload=os.getenv("APP_ENV", "dev") == "dev",
    )
